from .reflector import Reflector

__all__ = ["Reflector"]
