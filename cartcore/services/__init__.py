# Services Module
from .models import ProductRecord
from .catalog import HttpProductCatalog, ProductCatalog
from .preferences import PreferenceEventLogger

__all__ = ["ProductRecord", "HttpProductCatalog", "ProductCatalog", "PreferenceEventLogger"]
