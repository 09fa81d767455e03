"""FitGrit plan worker: async personalized workout plan generation."""
__version__ = "0.1.0"
