"""Scripted style assistant: the first matching keyword group decides the reply."""

RESPONSES = [
    (("recommend", "suggest"),
     "I can help you with style recommendations! Could you tell me more about the occasion or your preferences?"),
    (("weather", "temperature"),
     "I can help you choose weather-appropriate clothing. Would you like me to check the current weather "
     "in your location?"),
    (("outfit", "combine", "match"),
     "I can help you create outfit combinations from your wardrobe. Would you like me to suggest some "
     "combinations?"),
    (("organize", "sort", "clean"),
     "I can help you organize your wardrobe! Would you like tips on categorizing your clothes or creating "
     "a capsule wardrobe?"),
    (("trend", "fashion", "style"),
     "I can help you stay updated with fashion trends! What kind of trends are you interested in?"),
]

DEFAULT_RESPONSE = (
    "I'm here to help you with your style questions! You can ask me about:\n"
    "- Style recommendations\n"
    "- Outfit combinations\n"
    "- Weather-appropriate clothing\n"
    "- Wardrobe organization\n"
    "- Fashion trends\n"
    "\n"
    "What would you like to know?"
)


def reply_to(message: str) -> str:
    lower_message = message.lower()
    for keywords, response in RESPONSES:
        if any(word in lower_message for word in keywords):
            return response
    return DEFAULT_RESPONSE
