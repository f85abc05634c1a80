"""
Prompt building helpers for song suggestions.

The prompt tells the model that a themed list of songs exists and needs
more entries, gives it the basis (songs already on the list or keywords
describing the theme) and insists on a bare JSON array as output.
"""

from typing import Sequence

MAIN_LIST_PROMPT = (
    "Assume there is a list of songs. The list has a topic. Each song in the list "
    "is fitting to that topic. More songs that are similar are needed."
)
EXISTING_SONGS_PROMPT = "These songs have already been added to the list:"
KEYWORDS_PROMPT = "The category fits these keywords:"
NUMBER_OF_SUGGESTIONS_PROMPT = "Generate a list of {number_of_suggestions} songs that fit the same category."
RETURN_PROMPT = (
    "Do not offer any explanation. Do not add any commentary. Format the song names "
    'in a JSON array of this format: ["Song Title Artist Name","Song Title Artist Name",...]. '
    "Only return this JSON array, filled with the song and artist names. Do not return "
    "anything else. Do not include special characters, dashes, colons or similar in the "
    "song and artist names. Do not format response as code."
)


def build_number_of_suggestions_prompt(number_of_suggestions: int) -> str:
    return NUMBER_OF_SUGGESTIONS_PROMPT.format(number_of_suggestions=number_of_suggestions)


def build_songs_prompt(song_titles: Sequence[str], number_of_suggestions: int) -> str:
    """Build the suggestion prompt from songs already on the list."""
    song_list = ",".join(song_titles)
    return (
        f"{MAIN_LIST_PROMPT} {EXISTING_SONGS_PROMPT} {song_list}. "
        f"{build_number_of_suggestions_prompt(number_of_suggestions)} {RETURN_PROMPT}"
    )


def build_keywords_prompt(keywords: str, number_of_suggestions: int) -> str:
    """Build the suggestion prompt from keywords describing the theme."""
    return (
        f"{MAIN_LIST_PROMPT} {KEYWORDS_PROMPT} {keywords}. "
        f"{build_number_of_suggestions_prompt(number_of_suggestions)} {RETURN_PROMPT}"
    )
