"""Projects, uploaded datasets and saved model configs."""
from .models import DatasetRecord, ModelRecord, ProjectRecord
from .store import CatalogStore

__all__ = ["CatalogStore", "DatasetRecord", "ModelRecord", "ProjectRecord"]
