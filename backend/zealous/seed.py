from sqlalchemy import func, select

from .database import async_session_maker
from .models import Benefit, BlogCategory, Category, Coupon, Faq, HealthCondition, Product, ProductType


async def seed_sample_data():
    """Seed the catalog facets, a few products, coupons and blog categories"""
    async with async_session_maker() as db:
        result = await db.execute(select(func.count(Product.id)))
        if result.scalar() > 0:
            print("📦 Sample data already exists")
            return

        print("🌱 Seeding sample data...")

        categories = {
            "Ayurvedic": Category(name="Ayurvedic", icon="fa-leaf", description="Traditional herbal formulations"),
            "Supplements": Category(name="Supplements", icon="fa-capsules", description="Daily vitamins and minerals"),
            "Personal Care": Category(name="Personal Care", icon="fa-pump-soap", description="Skin and hair care"),
        }
        product_types = {name: ProductType(name=name) for name in ("Capsules", "Powder", "Syrup", "Oil")}
        benefits = {
            "Immunity": Benefit(name="Immunity", icon="fa-shield", description="Supports natural defences"),
            "Digestion": Benefit(name="Digestion", icon="fa-seedling", description="Eases digestion"),
            "Energy": Benefit(name="Energy", icon="fa-bolt", description="Helps fight fatigue"),
            "Sleep": Benefit(name="Sleep", icon="fa-moon", description="Promotes restful sleep"),
        }
        conditions = {
            name: HealthCondition(name=name)
            for name in ("Digestive", "Stress", "Joint Pain", "Diabetes", "Hair Fall", "Skin Care")
        }
        db.add_all([*categories.values(), *product_types.values(), *benefits.values(), *conditions.values()])
        await db.flush()

        products_data = [
            {"name": "Ashwagandha Capsules", "sku": "ZH-ASH-60", "category": "Ayurvedic", "types": ["Capsules"],
             "benefits": ["Energy", "Sleep"], "conditions": ["Stress"], "price": 499, "discount": 10,
             "about": "KSM-66 ashwagandha root extract", "pack_size": "60 capsules", "form": "Capsule"},
            {"name": "Triphala Churna", "sku": "ZH-TRI-100", "category": "Ayurvedic", "types": ["Powder"],
             "benefits": ["Digestion"], "conditions": ["Digestive"], "price": 249, "discount": 5,
             "about": "Classic three-fruit blend", "pack_size": "100 g", "form": "Powder"},
            {"name": "Giloy Tulsi Syrup", "sku": "ZH-GIL-200", "category": "Ayurvedic", "types": ["Syrup"],
             "benefits": ["Immunity"], "conditions": [], "price": 299, "discount": 0,
             "about": "Giloy and tulsi immunity tonic", "pack_size": "200 ml", "form": "Syrup"},
            {"name": "Vitamin D3 + K2", "sku": "ZH-VD3-60", "category": "Supplements", "types": ["Capsules"],
             "benefits": ["Immunity", "Energy"], "conditions": ["Joint Pain"], "price": 699, "discount": 15,
             "about": "Bone and immune support", "pack_size": "60 softgels", "form": "Softgel"},
            {"name": "Bhringraj Hair Oil", "sku": "ZH-BHR-100", "category": "Personal Care", "types": ["Oil"],
             "benefits": [], "conditions": ["Hair Fall"], "price": 349, "discount": 20,
             "about": "Cold-pressed bhringraj in sesame oil", "pack_size": "100 ml", "form": "Oil"},
        ]

        for prod_data in products_data:
            product = Product(
                name=prod_data["name"],
                sku=prod_data["sku"],
                about=prod_data["about"],
                price=prod_data["price"],
                discount=prod_data["discount"],
                pack_size=prod_data["pack_size"],
                form=prod_data["form"],
                stock=100,
                expiry_months=24,
                category_id=categories[prod_data["category"]].id,
                product_types=[product_types[name] for name in prod_data["types"]],
                benefits=[benefits[name] for name in prod_data["benefits"]],
                health_conditions=[conditions[name] for name in prod_data["conditions"]],
                faqs=[Faq(question="How should I store it?", answer="In a cool, dry place away from sunlight.")],
            )
            db.add(product)

        db.add_all([
            Coupon(code="WELCOME10", discount_percentage=10, max_discount_amount=100, min_order_amount=299),
            Coupon(code="HEALTH20", discount_percentage=20, max_discount_amount=250, min_order_amount=999),
        ])
        db.add_all([BlogCategory(name=name) for name in ("Ayurveda", "Nutrition", "Wellness")])

        await db.commit()
        print("✅ Sample data seeded successfully")
