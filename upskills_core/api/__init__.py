from .skills_api import SkillsApi, error_response

__all__ = ["SkillsApi", "error_response"]
