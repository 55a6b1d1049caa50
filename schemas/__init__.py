from .records import OpportunityDefaults, OperationResult, RecordRef

__all__ = ["OpportunityDefaults", "OperationResult", "RecordRef"]
