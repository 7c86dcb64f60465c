"""Deal pipeline module -- records, stage guard, board and dashboard.

Provides SQLAlchemy models (Deal, Document, Activity, Contact), Pydantic
schemas, DealRepository for async CRUD, the stage-transition guard and the
DealPipeline service that applies it.
"""
