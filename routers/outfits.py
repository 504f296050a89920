import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File, Form
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from config import Settings, get_settings
from database import get_db
from errors import WardrobeAPIError
from oauth import get_current_user
from services import saved_outfits
from services.recommendation import generate_recommendations, preferences_from_row
from services.stats import outfit_stats
from services.weather import WeatherService, get_weather_service
from utils import save_upload_file, get_file_url, delete_upload_file
import models, schemas

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/outfits",
    tags=["Outfits"]
)


def _get_owned_outfit(db: Session, outfit_id: int, current_user: models.User) -> models.Outfit:
    outfit = db.query(models.Outfit).filter(
        models.Outfit.id == outfit_id,
        models.Outfit.user_id == current_user.id
    ).first()

    if not outfit:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND,
                            detail=f"Outfit with id {outfit_id} not found")
    return outfit


# ---- Recommendations ----

@router.get("/recommendations", response_model=List[schemas.CandidateOutfit])
def get_recommendations(city: Optional[str] = None, db: Session = Depends(get_db),
                        current_user: models.User = Depends(get_current_user),
                        weather_service: WeatherService = Depends(get_weather_service)):
    try:
        items = db.query(models.WardrobeItem).filter(models.WardrobeItem.user_id == current_user.id).all()
        preferences = preferences_from_row(
            db.query(models.WeatherPreferences).filter(
                models.WeatherPreferences.user_id == current_user.id).first()
        )
        weather = weather_service.snapshot(city)
        recommendations = generate_recommendations(items, weather, preferences)
        logger.info("Generated %d recommendations for user %s at %s/%s",
                    len(recommendations), current_user.id, weather.temperature, weather.condition)
        return recommendations
    except WardrobeAPIError:
        raise
    except Exception as e:
        logger.exception("Error generating recommendations for user %s", current_user.id)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                            content={"message": "Failed to generate recommendations", "error": str(e)})


# ---- Saved outfits ----

@router.get("/saved", response_model=List[schemas.SavedOutfitResponse])
def get_saved_outfits(db: Session = Depends(get_db), current_user: models.User = Depends(get_current_user)):
    return saved_outfits.list_saved_outfits(db, current_user)


@router.post("/saved", status_code=status.HTTP_201_CREATED, response_model=schemas.SaveOutfitResponse)
def save_outfit(payload: schemas.SaveOutfitRequest, db: Session = Depends(get_db),
                current_user: models.User = Depends(get_current_user)):
    try:
        ref = saved_outfits.resolve_ref(payload)
        saved = saved_outfits.save_outfit(db, current_user, ref, payload)
    except WardrobeAPIError:
        raise
    except Exception as e:
        logger.exception("Error saving outfit %s for user %s", payload.id, current_user.id)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                            content={"message": "Failed to save outfit", "error": str(e)})

    logger.info("User %s saved outfit %s", current_user.id, saved.outfit_id)
    return {"message": "Outfit saved successfully", "savedOutfit": saved_outfits.serialize_saved(saved)}


@router.delete("/saved")
def remove_saved_outfit(payload: schemas.RemoveSavedOutfitRequest, db: Session = Depends(get_db),
                        current_user: models.User = Depends(get_current_user)):
    try:
        saved_outfits.remove_saved_outfit(db, current_user, payload.id)
    except WardrobeAPIError:
        raise
    except Exception as e:
        logger.exception("Error removing saved outfit %s for user %s", payload.id, current_user.id)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                            content={"message": "Failed to remove saved outfit", "error": str(e)})

    return {"message": "Outfit removed from saved items"}


# ---- Stats ----

@router.get("/stats", response_model=schemas.OutfitStats)
def get_outfit_stats(db: Session = Depends(get_db), current_user: models.User = Depends(get_current_user)):
    outfits = db.query(models.Outfit).filter(models.Outfit.user_id == current_user.id).all()
    return outfit_stats(outfits)


# ---- CRUD ----

@router.get("/", response_model=List[schemas.OutfitResponse])
def get_user_outfits(db: Session = Depends(get_db), current_user: models.User = Depends(get_current_user)):
    return db.query(models.Outfit).filter(
        models.Outfit.user_id == current_user.id
    ).order_by(models.Outfit.created_at.desc(), models.Outfit.id.desc()).all()


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=schemas.OutfitResponse)
def create_outfit(
        name: str = Form(...),
        description: Optional[str] = Form(None),
        occasion: Optional[str] = Form(None),
        weather: Optional[str] = Form(None),
        items: Optional[List[int]] = Form(None),
        image: Optional[UploadFile] = File(None),
        db: Session = Depends(get_db),
        settings: Settings = Depends(get_settings),
        current_user: models.User = Depends(get_current_user)
):
    # Every item must exist and belong to the user
    owned = saved_outfits.owned_items(db, current_user, items or [])

    image_url = None
    if image is not None and image.filename:
        image_url = get_file_url(save_upload_file(image, settings, prefix="outfit"), settings)

    try:
        new_outfit = models.Outfit(
            user_id=current_user.id,
            name=name,
            description=description,
            occasion=occasion,
            weather=weather,
            image_url=image_url,
        )
        new_outfit.items = owned

        db.add(new_outfit)
        db.commit()
    except Exception:
        db.rollback()
        delete_upload_file(image_url, settings)
        logger.exception("Failed to create outfit for user %s", current_user.id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create outfit")

    db.refresh(new_outfit)
    return new_outfit


@router.put("/{outfit_id}", response_model=schemas.OutfitResponse)
def update_outfit(
        outfit_id: int,
        name: Optional[str] = Form(None),
        description: Optional[str] = Form(None),
        occasion: Optional[str] = Form(None),
        weather: Optional[str] = Form(None),
        items: Optional[List[int]] = Form(None),
        image: Optional[UploadFile] = File(None),
        db: Session = Depends(get_db),
        settings: Settings = Depends(get_settings),
        current_user: models.User = Depends(get_current_user)
):
    outfit = _get_owned_outfit(db, outfit_id, current_user)

    if items is not None:
        outfit.items = saved_outfits.owned_items(db, current_user, items)
    updates = {"name": name, "description": description, "occasion": occasion, "weather": weather}
    for key, value in updates.items():
        if value is not None:
            setattr(outfit, key, value)

    old_image = new_image = None
    if image is not None and image.filename:
        new_image = get_file_url(save_upload_file(image, settings, prefix="outfit"), settings)
        old_image = outfit.image_url
        outfit.image_url = new_image

    try:
        db.commit()
    except Exception:
        db.rollback()
        delete_upload_file(new_image, settings)
        logger.exception("Failed to update outfit %s for user %s", outfit_id, current_user.id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update outfit")

    db.refresh(outfit)
    # Old file only goes once the new one is committed
    delete_upload_file(old_image, settings)
    return outfit


@router.delete("/{outfit_id}")
def delete_outfit(outfit_id: int, db: Session = Depends(get_db),
                  settings: Settings = Depends(get_settings),
                  current_user: models.User = Depends(get_current_user)):
    outfit = _get_owned_outfit(db, outfit_id, current_user)
    image_url = outfit.image_url
    db.delete(outfit)
    db.commit()
    delete_upload_file(image_url, settings)
    return {"message": "Outfit deleted successfully"}


@router.put("/{outfit_id}/favorite", response_model=schemas.OutfitResponse)
def toggle_outfit_favorite(outfit_id: int, db: Session = Depends(get_db),
                           current_user: models.User = Depends(get_current_user)):
    outfit = _get_owned_outfit(db, outfit_id, current_user)

    outfit.is_favorite = not outfit.is_favorite
    db.commit()
    db.refresh(outfit)

    return outfit


@router.put("/{outfit_id}/save", response_model=schemas.OutfitResponse)
def toggle_save_for_later(outfit_id: int, db: Session = Depends(get_db),
                          current_user: models.User = Depends(get_current_user)):
    outfit = _get_owned_outfit(db, outfit_id, current_user)

    outfit.saved_for_later = not outfit.saved_for_later
    db.commit()
    db.refresh(outfit)

    return outfit
