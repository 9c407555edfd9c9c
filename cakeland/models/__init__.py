from cakeland.models.user import User, UserRole
from cakeland.models.token_blacklist import TokenBlacklist
from cakeland.models.product import Product
from cakeland.models.cart import CartItem
from cakeland.models.wishlist import Wishlist
from cakeland.models.coupon import Coupon, DiscountType
