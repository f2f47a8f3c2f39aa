"""Offline prompt enhancement with Indonesian-flavoured keywords."""
import random

INDONESIAN_KEYWORDS = {
    "lighting": [
        "cahaya emas fajar",
        "sinar matahari tropis",
        "pencahayaan hangat remang",
        "neon khas perkotaan",
        "pencahayaan dramatis",
    ],
    "atmosphere": [
        "dengan nuansa Indonesia yang kental",
        "dalam suasana nusantara yang otentik",
        "menangkap kehangatan tropis",
    ],
    "quality": [
        "detail tajam",
        "resolusi tinggi 8k",
        "kualitas fotorealistis",
        "mahakarya",
        "trending di ArtStation",
        "hyper-detailed",
    ],
    "composition": [
        "komposisi seimbang",
        "sudut sinematik",
        "framing sempurna oleh alam",
        "golden ratio",
    ],
}


class IndonesianPromptEnhancer:
    @staticmethod
    def enhance(user_input: str, rng: random.Random | None = None) -> str:
        """Append a quality and a lighting keyword, and a composition keyword half the time."""
        if not user_input:
            return ""
        rng = rng or random.Random()

        parts = [
            user_input,
            rng.choice(INDONESIAN_KEYWORDS["quality"]),
            rng.choice(INDONESIAN_KEYWORDS["lighting"]),
        ]
        if rng.random() > 0.5:
            parts.append(rng.choice(INDONESIAN_KEYWORDS["composition"]))
        return ", ".join(parts)
