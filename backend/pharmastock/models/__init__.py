from pharmastock.models.batch import MedicineBatch
from pharmastock.models.stock_merge_log import StockMergeLog

__all__ = ["MedicineBatch", "StockMergeLog"]
