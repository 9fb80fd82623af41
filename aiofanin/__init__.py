from .channel import *
from .producer import Item, boring, boring_with_order
from .fanin import fan_in, fan_in_with_order, fan_in_with_select
from .driver import Outcome, consume, consume_in_order, consume_with_timeout

__version__ = '0.1.0'
