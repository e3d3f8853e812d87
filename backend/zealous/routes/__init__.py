from . import auth, blogs, cart, catalog, coupons, orders, payments, products, reviews, users, wishlist

routers = [
    auth.router,
    users.router,
    reviews.router,
    products.router,
    catalog.router,
    cart.router,
    wishlist.router,
    payments.router,
    orders.router,
    coupons.router,
    blogs.router,
]
