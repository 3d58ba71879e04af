"""CaliNode progression engine: quests, streaks and skill readiness for calisthenics training"""

__version__ = "0.1.0"
