from typing import Any, Generic, Optional, Type, TypeVar
from sqlmodel import SQLModel, Session

from app.db.models.base import utcnow

# Type générique pour le modèle (UgcVideo, ...)
ModelT = TypeVar("ModelT", bound=SQLModel)

class BaseRepository(Generic[ModelT]):
    """
    Repository de base : persistance générique, aucune logique métier.

    👉 Les repositories concrets définissent `model = MaClasseSQLModel`
       et ajoutent leurs requêtes spécifiques (filtrage par boutique, agrégats...).
    👉 commit=False laisse le service orchestrer une transaction globale.
    """

    model: Type[ModelT]

    def __init__(self, session: Session):
        self.session = session

    def get(self, id_: Any) -> Optional[ModelT]:
        return self.session.get(self.model, id_)

    def create(self, *, commit: bool = True, **fields) -> ModelT:
        entity = self.model(**fields)
        self.session.add(entity)
        self._flush_or_commit(entity, commit)
        return entity

    def update(self, entity: ModelT, *, commit: bool = True, **changes) -> ModelT:
        for key, value in changes.items():
            setattr(entity, key, value)
        if hasattr(entity, "updated_at"):
            setattr(entity, "updated_at", utcnow())
        self.session.add(entity)
        self._flush_or_commit(entity, commit)
        return entity

    def delete(self, entity: ModelT, *, commit: bool = True) -> None:
        self.session.delete(entity)
        if commit:
            self.session.commit()
        else:
            self.session.flush()

    def _flush_or_commit(self, entity: ModelT, commit: bool) -> None:
        if commit:
            self.session.commit()
            self.session.refresh(entity)
        else:
            # flush pour obtenir l'ID sans commit
            self.session.flush()
