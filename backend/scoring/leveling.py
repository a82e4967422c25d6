from dataclasses import dataclass

XP_PER_LEVEL = 100


@dataclass(frozen=True)
class LevelInfo:
    current: int
    experience: int
    experience_to_next: int
    percentage: int

    def to_dict(self):
        return {
            "current": self.current,
            "experience": self.experience,
            "experienceToNext": self.experience_to_next,
            "percentage": self.percentage,
        }


def _check(experience: int) -> int:
    if experience < 0:
        raise ValueError(f"experience must be non-negative, got {experience}")
    return int(experience)


def level_for(experience: int) -> int:
    return _check(experience) // XP_PER_LEVEL + 1


def experience_in_level(experience: int) -> int:
    return _check(experience) % XP_PER_LEVEL


def experience_to_next(experience: int) -> int:
    return XP_PER_LEVEL - experience_in_level(experience)


def progress_percentage(experience: int) -> int:
    # one level spans exactly 100 XP, so XP into the level is already a percentage
    return experience_in_level(experience)


def level_info(experience: int) -> LevelInfo:
    return LevelInfo(
        current=level_for(experience),
        experience=experience_in_level(experience),
        experience_to_next=experience_to_next(experience),
        percentage=progress_percentage(experience),
    )
