"""Saving recommended or existing outfits for a user.

Every public operation here is a single transaction: either all rows it
creates or removes are committed, or none are.
"""

import logging
from dataclasses import dataclass
from typing import List, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import models
import schemas
from errors import AlreadySaved, NotFoundError, SavedOutfitNotFound, UserInputError
from services.recommendation import CANDIDATE_PREFIX

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Candidate:
    """A transient recommendation that has no outfit row yet."""
    data: schemas.SaveOutfitRequest


@dataclass(frozen=True)
class Persisted:
    outfit_id: int


OutfitRef = Union[Candidate, Persisted]


def resolve_ref(payload: schemas.SaveOutfitRequest) -> OutfitRef:
    if isinstance(payload.id, int):
        return Persisted(outfit_id=payload.id)
    if not payload.id.startswith(CANDIDATE_PREFIX):
        raise UserInputError("Invalid outfit id")
    return Candidate(data=payload)


def owned_items(db: Session, user: models.User, item_ids: List[int]) -> List[models.WardrobeItem]:
    if not item_ids:
        return []
    items = db.query(models.WardrobeItem).filter(
        models.WardrobeItem.id.in_(item_ids),
        models.WardrobeItem.user_id == user.id,
    ).all()
    if len(items) != len(set(item_ids)):
        raise NotFoundError("One or more wardrobe items not found")
    return items


def _materialize(db: Session, user: models.User, candidate: Candidate) -> models.Outfit:
    data = candidate.data
    outfit = models.Outfit(
        user_id=user.id,
        name=data.name,
        description=data.description,
        occasion=data.occasion,
        weather=data.weather,
        candidate_id=str(data.id),
    )
    outfit.items = owned_items(db, user, [item.id for item in data.items])
    db.add(outfit)
    db.flush()  # Flush to get the outfit id for the saved record
    logger.info("Materialized recommendation %s as outfit %s for user %s", data.id, outfit.id, user.id)
    return outfit


def _candidate_outfit(db: Session, user: models.User, candidate: Candidate):
    """Outfit previously created from the same recommendation, if any."""
    return db.query(models.Outfit).filter(
        models.Outfit.candidate_id == str(candidate.data.id),
        models.Outfit.user_id == user.id,
    ).first()


def _existing_outfit(db: Session, user: models.User, ref: Persisted) -> models.Outfit:
    outfit = db.query(models.Outfit).filter(
        models.Outfit.id == ref.outfit_id,
        models.Outfit.user_id == user.id,
    ).first()
    if not outfit:
        raise NotFoundError("Outfit not found")
    return outfit


def save_outfit(db: Session, user: models.User, ref: OutfitRef,
                metadata: schemas.SaveOutfitRequest) -> models.SavedOutfit:
    try:
        if isinstance(ref, Candidate):
            outfit = _candidate_outfit(db, user, ref) or _materialize(db, user, ref)
        else:
            outfit = _existing_outfit(db, user, ref)

        existing = db.query(models.SavedOutfit).filter(
            models.SavedOutfit.outfit_id == outfit.id,
            models.SavedOutfit.user_id == user.id,
        ).first()
        if existing:
            raise AlreadySaved()

        saved = models.SavedOutfit(
            outfit_id=outfit.id,
            user_id=user.id,
            name=metadata.name,
            description=metadata.description,
            occasion=metadata.occasion,
            season=metadata.season,
            weather=metadata.weather,
            rating=metadata.rating,
            items=[item.model_dump() for item in metadata.items],
        )
        db.add(saved)
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent save of the same outfit
        db.rollback()
        raise AlreadySaved()
    except Exception:
        db.rollback()
        raise

    db.refresh(saved)
    return saved


def remove_saved_outfit(db: Session, user: models.User, outfit_id: int) -> None:
    saved = db.query(models.SavedOutfit).filter(
        models.SavedOutfit.outfit_id == outfit_id,
        models.SavedOutfit.user_id == user.id,
    ).first()
    if not saved:
        raise SavedOutfitNotFound()

    try:
        db.delete(saved)
        db.commit()
    except Exception:
        db.rollback()
        raise


def serialize_saved(saved: models.SavedOutfit) -> dict:
    outfit = saved.outfit
    if outfit is not None and outfit.items:
        items = [schemas.ItemSummary.model_validate(item).model_dump() for item in outfit.items]
    else:
        items = list(saved.items or [])
    data = schemas.SavedOutfitResponse.model_validate(saved).model_dump()
    data["items"] = items
    data["outfit_image"] = outfit.image_url if outfit is not None else None
    return data


def list_saved_outfits(db: Session, user: models.User) -> List[dict]:
    saved = db.query(models.SavedOutfit).filter(
        models.SavedOutfit.user_id == user.id
    ).order_by(models.SavedOutfit.saved_at.desc(), models.SavedOutfit.id.desc()).all()
    return [serialize_saved(entry) for entry in saved]
