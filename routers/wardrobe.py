import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File, Form
from sqlalchemy.orm import Session

import models, schemas
from config import Settings, get_settings
from database import get_db
import oauth
from services.stats import wardrobe_stats
from utils import save_upload_file, get_file_url, delete_upload_file

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/wardrobe", tags=["wardrobe"])


# ---- Helpers ----

def _parse_seasons(seasons: Optional[str]) -> List[str]:
    if not seasons:
        return []
    return [season.strip() for season in seasons.split(",") if season.strip()]


def _category_by_name(db: Session, name: str) -> models.Category:
    category = db.query(models.Category).filter(models.Category.name == (name or "").strip().lower()).first()
    if not category:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid category")
    return category


def _owned_item(db: Session, item_id: int, current_user: models.User) -> models.WardrobeItem:
    item = db.query(models.WardrobeItem).filter(models.WardrobeItem.id == item_id).first()
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")
    if item.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized")
    return item


# ---- CRUD ----

@router.get("/", response_model=List[schemas.WardrobeItemOut])
def get_wardrobe_items(db: Session = Depends(get_db), current_user: models.User = Depends(oauth.get_current_user)):
    return db.query(models.WardrobeItem).filter(
        models.WardrobeItem.user_id == current_user.id
    ).order_by(models.WardrobeItem.created_at.desc(), models.WardrobeItem.id.desc()).all()


@router.get("/stats", response_model=schemas.WardrobeStats)
def get_wardrobe_stats(db: Session = Depends(get_db), current_user: models.User = Depends(oauth.get_current_user)):
    items = db.query(models.WardrobeItem).filter(models.WardrobeItem.user_id == current_user.id).all()
    return wardrobe_stats(items)


@router.post("/", response_model=schemas.WardrobeItemOut, status_code=status.HTTP_201_CREATED)
def add_wardrobe_item(
        name: str = Form(...),
        category_id: str = Form(...),
        description: Optional[str] = Form(None),
        color: Optional[str] = Form(None),
        brand: Optional[str] = Form(None),
        seasons: Optional[str] = Form(None),
        image: Optional[UploadFile] = File(None),
        db: Session = Depends(get_db),
        settings: Settings = Depends(get_settings),
        current_user: models.User = Depends(oauth.get_current_user)
):
    if image is None or not image.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No image file uploaded")

    # category_id carries the category name, e.g. "tops"
    category = _category_by_name(db, category_id)
    filename = save_upload_file(image, settings, prefix="image")

    try:
        item = models.WardrobeItem(
            user_id=current_user.id,
            category_id=category.id,
            name=name,
            description=description,
            image_url=get_file_url(filename, settings),
            color=color,
            brand=brand,
            seasons=_parse_seasons(seasons),
        )
        db.add(item)
        db.commit()
        db.refresh(item)
        logger.info("User %s added wardrobe item %s", current_user.id, item.id)
        return item
    except Exception:
        db.rollback()
        delete_upload_file(filename, settings)
        logger.exception("Failed to add wardrobe item for user %s", current_user.id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to add item")


@router.put("/{item_id}", response_model=schemas.WardrobeItemOut)
def update_wardrobe_item(
        item_id: int,
        name: Optional[str] = Form(None),
        category_id: Optional[str] = Form(None),
        description: Optional[str] = Form(None),
        color: Optional[str] = Form(None),
        brand: Optional[str] = Form(None),
        seasons: Optional[str] = Form(None),
        image: Optional[UploadFile] = File(None),
        db: Session = Depends(get_db),
        settings: Settings = Depends(get_settings),
        current_user: models.User = Depends(oauth.get_current_user)
):
    item = _owned_item(db, item_id, current_user)

    if name is not None:
        item.name = name
    if category_id is not None:
        item.category_id = _category_by_name(db, category_id).id
    if description is not None:
        item.description = description
    if color is not None:
        item.color = color
    if brand is not None:
        item.brand = brand
    if seasons is not None:
        item.seasons = _parse_seasons(seasons)

    old_image = new_image = None
    if image is not None and image.filename:
        new_image = save_upload_file(image, settings, prefix="image")
        old_image = item.image_url
        item.image_url = get_file_url(new_image, settings)

    try:
        db.commit()
    except Exception:
        db.rollback()
        delete_upload_file(new_image, settings)
        logger.exception("Failed to update wardrobe item %s", item_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update item")
    db.refresh(item)
    # Old file only goes once the new one is committed
    delete_upload_file(old_image, settings)
    return item


@router.delete("/{item_id}")
def delete_wardrobe_item(item_id: int, db: Session = Depends(get_db),
                         settings: Settings = Depends(get_settings),
                         current_user: models.User = Depends(oauth.get_current_user)):
    item = _owned_item(db, item_id, current_user)
    image_url = item.image_url
    db.delete(item)
    db.commit()
    delete_upload_file(image_url, settings)
    return {"message": "Item deleted successfully"}
