from .user import User
from .learning_path import LearningPath
from .quiz import Quiz, QuizScore
from .activity import ActivitySubmission
from .evaluation import Evaluation, EvaluationScore
