from .auth import router as auth_router
from .wardrobe import router as wardrobe_router
from .outfits import router as outfits_router
from .weather import router as weather_router
from .chatbot import router as chatbot_router
