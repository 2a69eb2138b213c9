"""InterviewPro gateway: interview-practice proxy in front of OpenAI chat and speech."""

__version__ = "2.1.0"
