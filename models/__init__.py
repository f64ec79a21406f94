from .base import Base, create_session_maker, init_models
from .cart_record import CartRecord

__all__ = [
    "Base", "create_session_maker", "init_models",
    "CartRecord",
]
