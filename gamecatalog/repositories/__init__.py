"""
Repositories package

Each repository encapsulates database operations for a model:
- game_repository.py: catalog CRUD
- game_query_repository.py: raw statements for the query engine
- library_repository.py: ownership records
- user_repository.py: users

Usage:
    from gamecatalog.repositories.game_repository import GameRepository
    game = GameRepository.get_by_id("SLUS-00001")
"""
