from estore.models.user import User
from estore.models.product import Product
from estore.models.order_line import OrderLine
from estore.models.order import Order
from estore.models.download import DownloadRecord

# add ALL models here
