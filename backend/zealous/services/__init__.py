from .mailer import Mailer, get_mailer
from .razorpay_gateway import RazorpayGateway, get_gateway
from .shiprocket import ShiprocketClient, get_carrier

__all__ = [
    "Mailer",
    "RazorpayGateway",
    "ShiprocketClient",
    "get_carrier",
    "get_gateway",
    "get_mailer",
]
