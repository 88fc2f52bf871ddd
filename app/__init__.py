"""
WorkSkill AI
Skill tracking backend with AI-assisted resume parsing and exams.

Architecture:
- MongoDB: accounts, profiles, resumes, skills, analyses
- Gemini: resume parsing, exam questions (not a source of truth!)
- ML service: skill gap analysis and course recommendations
"""

__version__ = "1.0.0"
