# pranveda/services/catalog.py
"""
Static wellness content served by the meditation, workout and audio routes.

Session records reference catalog entries by `id` (content_id).
"""
from pranveda.schemas.session import (
    CatalogCategory,
    Exercise,
    MeditationContent,
    Technique,
    WorkoutRoutine,
)

# ----- Meditation -----

MEDITATION_CATEGORIES: list[CatalogCategory] = [
    CatalogCategory(
        id="breathing",
        name="Breathing",
        description="Pranayama and paced breathing to calm the nervous system.",
    ),
    CatalogCategory(
        id="mindfulness",
        name="Mindfulness",
        description="Present-moment awareness practices.",
    ),
    CatalogCategory(
        id="body-scan",
        name="Body Scan",
        description="Progressive attention through the body to release tension.",
    ),
    CatalogCategory(
        id="sleep",
        name="Sleep",
        description="Wind-down sessions for better rest.",
    ),
]

MEDITATION_TECHNIQUES: list[Technique] = [
    Technique(
        id="box-breathing",
        name="Box Breathing",
        category="breathing",
        description="Equal-count inhale, hold, exhale and hold.",
        steps=["Inhale for 4", "Hold for 4", "Exhale for 4", "Hold for 4"],
    ),
    Technique(
        id="nadi-shodhana",
        name="Alternate Nostril Breathing",
        category="breathing",
        description="Balancing breath alternating between nostrils.",
        steps=[
            "Close the right nostril and inhale left",
            "Close the left nostril and exhale right",
            "Inhale right",
            "Close the right nostril and exhale left",
        ],
    ),
    Technique(
        id="breath-awareness",
        name="Breath Awareness",
        category="mindfulness",
        description="Rest attention on the natural breath.",
        steps=["Sit comfortably", "Notice each breath", "Return gently when the mind wanders"],
    ),
    Technique(
        id="progressive-relaxation",
        name="Progressive Relaxation",
        category="body-scan",
        description="Tense and release muscle groups from feet to head.",
        steps=["Start at the feet", "Tense for 5 seconds", "Release and notice", "Move upward"],
    ),
]

MEDITATIONS: dict[str, MeditationContent] = {
    m.id: m
    for m in [
        MeditationContent(
            id="breathing-basics",
            title="Breathing Basics",
            description="Learn fundamental breathing techniques for relaxation.",
            category="breathing",
            difficulty="beginner",
            duration=10,
            audio_path="meditation/breathing-basics.mp3",
            techniques=["box-breathing"],
        ),
        MeditationContent(
            id="mindfulness-5min",
            title="5-Minute Mindfulness",
            description="A short present-moment practice for busy days.",
            category="mindfulness",
            difficulty="beginner",
            duration=5,
            audio_path="meditation/mindfulness-5min.mp3",
            techniques=["breath-awareness"],
        ),
        MeditationContent(
            id="pranayama-flow",
            title="Pranayama Flow",
            description="Alternate nostril breathing to balance energy.",
            category="breathing",
            difficulty="intermediate",
            duration=15,
            audio_path="meditation/pranayama-flow.mp3",
            techniques=["nadi-shodhana"],
        ),
        MeditationContent(
            id="body-scan-15min",
            title="Full Body Scan",
            description="Release tension with a guided scan from head to toe.",
            category="body-scan",
            difficulty="beginner",
            duration=15,
            audio_path="meditation/body-scan-15min.mp3",
            techniques=["progressive-relaxation"],
        ),
        MeditationContent(
            id="deep-rest-30min",
            title="Deep Rest",
            description="Long guided relaxation before sleep.",
            category="sleep",
            difficulty="advanced",
            duration=30,
            audio_path="meditation/deep-rest-30min.mp3",
            techniques=["progressive-relaxation", "breath-awareness"],
        ),
    ]
}

# ----- Workout -----

WORKOUT_CATEGORIES: list[CatalogCategory] = [
    CatalogCategory(id="cardio", name="Cardio", description="Raise the heart rate and build endurance."),
    CatalogCategory(id="strength", name="Strength", description="Bodyweight strength training."),
    CatalogCategory(id="flexibility", name="Flexibility", description="Yoga and mobility flows."),
]

EXERCISES: dict[str, Exercise] = {
    e.id: e
    for e in [
        Exercise(
            id="jumping-jacks",
            name="Jumping Jacks",
            sets=3,
            reps=15,
            instructions="Jump while spreading legs and raising arms overhead.",
        ),
        Exercise(
            id="mountain-climbers",
            name="Mountain Climbers",
            sets=3,
            reps=10,
            instructions="From plank, drive knees towards the chest alternately.",
        ),
        Exercise(
            id="squats",
            name="Bodyweight Squats",
            sets=3,
            reps=12,
            instructions="Feet shoulder-width apart, lower hips back and down.",
        ),
        Exercise(
            id="push-ups",
            name="Push-ups",
            sets=3,
            reps=10,
            instructions="Keep a straight line from head to heels.",
        ),
        Exercise(
            id="plank",
            name="Plank Hold",
            sets=3,
            duration_seconds=30,
            instructions="Hold a straight forearm plank.",
        ),
        Exercise(
            id="sun-salutation",
            name="Sun Salutation",
            sets=5,
            duration_seconds=60,
            rest_seconds=15,
            instructions="Flow through the twelve Surya Namaskar postures.",
        ),
    ]
}

WORKOUTS: dict[str, WorkoutRoutine] = {
    w.id: w
    for w in [
        WorkoutRoutine(
            id="beginner-cardio",
            title="Beginner Cardio",
            description="Low-impact cardio to get your heart pumping.",
            category="cardio",
            difficulty="beginner",
            duration=20,
            calories_estimate=150,
            exercises=[EXERCISES["jumping-jacks"], EXERCISES["mountain-climbers"]],
        ),
        WorkoutRoutine(
            id="strength-foundations",
            title="Strength Foundations",
            description="Full-body bodyweight strength circuit.",
            category="strength",
            difficulty="intermediate",
            duration=30,
            calories_estimate=220,
            exercises=[EXERCISES["squats"], EXERCISES["push-ups"], EXERCISES["plank"]],
        ),
        WorkoutRoutine(
            id="morning-yoga",
            title="Morning Yoga Flow",
            description="Gentle sun salutations to wake up the body.",
            category="flexibility",
            difficulty="beginner",
            duration=15,
            calories_estimate=80,
            exercises=[EXERCISES["sun-salutation"]],
        ),
        WorkoutRoutine(
            id="hiit-burn",
            title="HIIT Burn",
            description="High intensity intervals for experienced athletes.",
            category="cardio",
            difficulty="advanced",
            duration=25,
            calories_estimate=300,
            exercises=[
                EXERCISES["jumping-jacks"],
                EXERCISES["mountain-climbers"],
                EXERCISES["squats"],
            ],
        ),
    ]
}

# ----- Audio -----

# (id, title, type, category, duration_seconds, path)
AUDIO_TRACKS: list[tuple[str, str, str, str, int, str]] = [
    ("celebration-meditation", "Meditation Complete", "celebration", "meditation_complete", 4, "celebrations/meditation-complete.mp3"),
    ("celebration-workout", "Workout Complete", "celebration", "workout_complete", 4, "celebrations/workout-complete.mp3"),
    ("celebration-streak", "Streak Milestone", "celebration", "streak_milestone", 5, "celebrations/streak-milestone.mp3"),
    ("celebration-badge", "Achievement Unlocked", "celebration", "badge_unlock", 3, "celebrations/badge-unlock.mp3"),
    ("celebration-level", "Level Up", "celebration", "level_up", 5, "celebrations/level-up.mp3"),
    ("guided-breathing-5min", "Guided Breathing", "meditation", "breathing", 300, "meditation/guided-breathing-5min.mp3"),
    ("breathing-basics", "Breathing Basics", "meditation", "breathing", 600, "meditation/breathing-basics.mp3"),
    ("mindfulness-5min", "5-Minute Mindfulness", "meditation", "mindfulness", 300, "meditation/mindfulness-5min.mp3"),
    ("body-scan-15min", "Body Scan", "meditation", "body-scan", 900, "meditation/body-scan-15min.mp3"),
    ("rain-ambient", "Gentle Rain", "ambient", "rain", 1800, "ambient/rain.mp3"),
    ("ocean-waves", "Ocean Waves", "ambient", "ocean", 1800, "ambient/ocean-waves.mp3"),
    ("forest-morning", "Forest Morning", "ambient", "forest", 1200, "ambient/forest-morning.mp3"),
]
