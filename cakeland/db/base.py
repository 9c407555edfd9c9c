from cakeland.db.base_class import Base


# IMPORT ALL MODELS HERE (THIS REGISTERS THEM WITH Base.metadata)
from cakeland.models.user import User
from cakeland.models.token_blacklist import TokenBlacklist
from cakeland.models.product import Product
from cakeland.models.cart import CartItem
from cakeland.models.wishlist import Wishlist
from cakeland.models.coupon import Coupon
