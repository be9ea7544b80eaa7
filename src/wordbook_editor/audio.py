"""Pronunciation audio URLs derived from a headword."""

from __future__ import annotations

from typing import NamedTuple
from urllib.parse import quote

YOUDAO_VOICE_URL = "https://dict.youdao.com/dictvoice?audio={word}&type={variant}"

# Voice variant codes understood by the dictvoice endpoint
US_VARIANT = 1
UK_VARIANT = 2


class AudioUrls(NamedTuple):
    us: str
    uk: str


def derive_audio_urls(headword: str) -> AudioUrls:
    """Build the US/UK playback URLs for *headword*."""
    word = quote(headword.strip(), safe="")
    return AudioUrls(
        us=YOUDAO_VOICE_URL.format(word=word, variant=US_VARIANT),
        uk=YOUDAO_VOICE_URL.format(word=word, variant=UK_VARIANT),
    )
