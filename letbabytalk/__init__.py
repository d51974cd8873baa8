"""LetBabyTalk client core.

Records a baby's cry, uploads it for classification, lets the caregiver
rate the answer and summarizes past recordings per cry category.
"""

__version__ = "1.0.0"
