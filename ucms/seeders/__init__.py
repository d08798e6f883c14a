from .seeder import seed_database

__all__ = ["seed_database"]
