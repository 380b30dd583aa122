from .process_repository import ProcessRepository, SqliteProcessRepository

__all__ = ['ProcessRepository', 'SqliteProcessRepository']
