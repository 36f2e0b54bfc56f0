from app.merge.engine import fold_transactions, merge_transactions

__all__ = ["fold_transactions", "merge_transactions"]
