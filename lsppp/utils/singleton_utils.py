"""singleton pattern base class implementation"""

from threading import Lock


class SingletonInstance:
    """base class for singleton pattern implementation

    each subclass gets its own instance slot, so the logger and the
    workspace never share one.
    """

    _instances: dict = {}
    _creation_lock = Lock()

    @classmethod
    def instance(cls, *args, **kwargs):
        """create or get the singleton instance"""
        with cls._creation_lock:
            if cls not in SingletonInstance._instances:
                SingletonInstance._instances[cls] = cls(*args, **kwargs)
            return SingletonInstance._instances[cls]

    @classmethod
    def reset_instance(cls):
        """reset the singleton instance (for testing)"""
        with cls._creation_lock:
            SingletonInstance._instances.pop(cls, None)
