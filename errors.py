"""Application errors and the HTTP status each one is reported with."""

from fastapi import status


class WardrobeAPIError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Something went wrong!"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class UserInputError(WardrobeAPIError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class NotFoundError(WardrobeAPIError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ConflictError(WardrobeAPIError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class RateLimitedError(WardrobeAPIError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Too many requests, please try again later"


class DependencyError(WardrobeAPIError):
    """An upstream service (weather, email, storage) failed."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "An upstream service failed"


# Recommendation outcomes the client should turn into guidance for the user

class EmptyWardrobe(NotFoundError):
    default_message = "No wardrobe items found. Please add some items to your wardrobe first."


class NoViableOutfits(NotFoundError):
    default_message = (
        "Could not generate recommendations with the current wardrobe items. "
        "Please add more items to your wardrobe."
    )


class SavedOutfitNotFound(NotFoundError):
    default_message = "Saved outfit not found"


class AlreadySaved(ConflictError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Outfit is already saved"


class CityNotFound(NotFoundError):
    pass
