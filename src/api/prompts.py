"""
Prompt construction for post generation.

The clause tables below are the product's prompt wording; the order in which
``build_prompt`` joins them is fixed.
"""
from typing import Optional

PLATFORM_GUIDELINES = {
    "twitter": "Keep it under 280 characters and make it engaging and shareable.",
    "linkedin": "Make it professional and suitable for LinkedIn audience. Can be longer form content.",
    "facebook": "Make it conversational and engaging for Facebook audience.",
    "instagram": "Make it visually engaging and suitable for Instagram audience.",
    "threads": "Keep it conversational and authentic for Threads audience.",
}

TONE_GUIDELINES = {
    "professional": "Use professional language and maintain a business-appropriate tone.",
    "friendly": "Use warm, approachable language that feels personal and friendly.",
    "funny": "Add humor and wit to make the post entertaining and shareable.",
    "bold": "Use strong, confident language that makes a statement.",
    "inspiring": "Make it motivational and uplifting to inspire the audience.",
    "casual": "Use relaxed, informal language as if talking to a friend.",
}

PLATFORMS = tuple(PLATFORM_GUIDELINES)
TONES = tuple(TONE_GUIDELINES)

NO_IDEA_CLAUSE = "Create an engaging post about a relevant and interesting topic."
EMOJI_CLAUSE = "Include relevant emojis to make the post more engaging."
HASHTAG_CLAUSE = "Include 2-5 relevant hashtags at the end."
IMAGE_CLAUSE = "At the end, suggest 1-2 types of images that would work well with this post."
CLOSING_CLAUSE = "Return only the post content, no additional commentary or explanation."


# PUBLIC_INTERFACE
def build_prompt(
    idea: Optional[str],
    platform: str,
    tone: str,
    add_emojis: bool = False,
    add_hashtags: bool = False,
    suggest_images: bool = False,
) -> str:
    """
    Build the instruction sent to the generative model.

    Args:
        idea: Optional topic supplied by the user, embedded verbatim in quotes.
        platform: Target network; unknown values get no platform clause.
        tone: Desired voice; unknown values get no tone clause.
        add_emojis: Ask for emojis.
        add_hashtags: Ask for 2-5 hashtags at the end.
        suggest_images: Ask for 1-2 image suggestions at the end.

    Returns:
        str: The full prompt, always ending with the closing instruction.
    """
    parts = [f"Create a social media post for {platform} with a {tone} tone."]

    if idea:
        parts.append(f'The post should be based on this idea: "{idea}".')
    else:
        parts.append(NO_IDEA_CLAUSE)

    if platform in PLATFORM_GUIDELINES:
        parts.append(PLATFORM_GUIDELINES[platform])
    if tone in TONE_GUIDELINES:
        parts.append(TONE_GUIDELINES[tone])

    if add_emojis:
        parts.append(EMOJI_CLAUSE)
    if add_hashtags:
        parts.append(HASHTAG_CLAUSE)
    if suggest_images:
        parts.append(IMAGE_CLAUSE)

    parts.append(CLOSING_CLAUSE)
    return " ".join(parts)
