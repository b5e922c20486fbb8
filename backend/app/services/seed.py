"""Demo accounts and sample quizzes for local development."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.user import User, UserRole
from app.schemas.quiz import QuizCreateRequest
from app.services.attempts import AttemptRepository, score_answers
from app.services.credentials import UserRepository
from app.services.quizzes import QuizRepository

log = logging.getLogger(__name__)

DEMO_PASSWORD = "password123"

DEMO_USERS = [
    {"username": "teacher1", "role": UserRole.teacher, "display_name": "John Smith"},
    {"username": "student1", "role": UserRole.student, "display_name": "Alice Johnson"},
]


def _q(text: str, options: list[str], correct: int) -> dict:
    return {"text": text, "options": options, "correct_answer": correct}


DEMO_QUIZZES = [
    {
        "title": "Comprehensive General Knowledge Quiz",
        "description": "A thorough test of your general knowledge across various topics",
        "subject": "General Knowledge",
        "time_limit": 1800,
        "questions": [
            _q("Which is the largest ocean on Earth?", ["Atlantic", "Indian", "Arctic", "Pacific"], 3),
            _q("Who painted the Mona Lisa?", ["Vincent van Gogh", "Leonardo da Vinci", "Pablo Picasso", "Michelangelo"], 1),
            _q("What is the capital of Japan?", ["Seoul", "Beijing", "Tokyo", "Bangkok"], 2),
            _q("Which planet is known as the Red Planet?", ["Venus", "Mars", "Jupiter", "Saturn"], 1),
            _q("Who wrote 'Romeo and Juliet'?", ["Charles Dickens", "William Shakespeare", "Jane Austen", "Mark Twain"], 1),
            _q("What is the chemical symbol for gold?", ["Ag", "Fe", "Au", "Cu"], 2),
            _q("Which country is home to the Great Barrier Reef?", ["Brazil", "Indonesia", "Australia", "Thailand"], 2),
            _q("What is the largest mammal in the world?", ["African Elephant", "Blue Whale", "Giraffe", "Polar Bear"], 1),
            _q("In which year did World War II end?", ["1943", "1944", "1945", "1946"], 2),
            _q("What is the currency of Brazil?", ["Peso", "Real", "Dollar", "Euro"], 1),
            _q("Who is known as the father of computers?", ["Charles Babbage", "Alan Turing", "Bill Gates", "Steve Jobs"], 0),
            _q("Which is the longest river in the world?", ["Amazon", "Nile", "Mississippi", "Yangtze"], 1),
            _q("What is the hardest natural substance on Earth?", ["Gold", "Iron", "Diamond", "Platinum"], 2),
            _q("Who was the first woman to win a Nobel Prize?", ["Marie Curie", "Mother Teresa", "Jane Addams", "Pearl Buck"], 0),
            _q("What is the smallest country in the world?", ["Monaco", "San Marino", "Vatican City", "Liechtenstein"], 2),
        ],
    },
    {
        "title": "Advanced Science Quiz",
        "description": "Test your knowledge of various scientific concepts and discoveries",
        "subject": "Science",
        "time_limit": 1800,
        "questions": [
            _q("What is the speed of light approximately?", ["299,792 km/s", "199,792 km/s", "399,792 km/s", "499,792 km/s"], 0),
            _q("What is the atomic number of carbon?", ["4", "6", "8", "12"], 1),
            _q("Which of these is not a type of electromagnetic radiation?", ["X-rays", "Gamma rays", "Sound waves", "Ultraviolet"], 2),
            _q("What is the process by which plants make their own food?", ["Photosynthesis", "Respiration", "Fermentation", "Decomposition"], 0),
            _q("What is the largest organ in the human body?", ["Brain", "Liver", "Heart", "Skin"], 3),
            _q("Which element has the chemical symbol 'Fe'?", ["Iron", "Fluorine", "Francium", "Iodine"], 0),
            _q(
                "What is the name of the force that keeps planets orbiting the Sun?",
                ["Nuclear force", "Electromagnetic force", "Gravitational force", "Centripetal force"],
                2,
            ),
            _q("Which of these is not a state of matter?", ["Plasma", "Energy", "Gas", "Solid"], 1),
            _q("What is the unit of electrical resistance?", ["Volt", "Ampere", "Ohm", "Watt"], 2),
            _q("Which planet has the most moons?", ["Jupiter", "Saturn", "Uranus", "Neptune"], 1),
            _q("What is the smallest unit of life?", ["Atom", "Cell", "Molecule", "Tissue"], 1),
            _q("Which gas makes up the majority of Earth's atmosphere?", ["Oxygen", "Carbon Dioxide", "Nitrogen", "Hydrogen"], 2),
            _q("What is the study of fossils called?", ["Paleontology", "Archaeology", "Geology", "Biology"], 0),
            _q("What type of energy is stored in chemical bonds?", ["Kinetic", "Potential", "Thermal", "Nuclear"], 1),
            _q(
                "Which of these is not one of Newton's laws of motion?",
                ["Law of inertia", "Law of acceleration", "Law of conservation", "Law of reaction"],
                2,
            ),
        ],
    },
    {
        "title": "History Through the Ages",
        "description": "Journey through time with this comprehensive history quiz",
        "subject": "History",
        "time_limit": 1800,
        "questions": [
            _q("In which year did Christopher Columbus first reach the Americas?", ["1492", "1498", "1502", "1510"], 0),
            _q("Who was the first Emperor of China?", ["Qin Shi Huang", "Sun Yat-sen", "Kublai Khan", "Wu Zetian"], 0),
            _q(
                "Which ancient wonder was located in Alexandria, Egypt?",
                ["Colossus of Rhodes", "Hanging Gardens", "Great Lighthouse", "Temple of Artemis"],
                2,
            ),
            _q(
                "What was the main cause of the French Revolution?",
                ["Foreign invasion", "Social inequality", "Natural disasters", "Religious conflict"],
                1,
            ),
            _q("Who wrote 'The Art of War'?", ["Confucius", "Sun Tzu", "Lao Tzu", "Buddha"], 1),
            _q(
                "Which empire was known as 'the empire on which the sun never sets'?",
                ["Roman Empire", "Ottoman Empire", "British Empire", "Mongol Empire"],
                2,
            ),
            _q("In which year did World War I begin?", ["1912", "1914", "1916", "1918"], 1),
            _q("Who was the first woman to win a Nobel Prize?", ["Mother Teresa", "Marie Curie", "Jane Addams", "Pearl Buck"], 1),
            _q("Which civilization built the Machu Picchu?", ["Aztecs", "Mayans", "Incas", "Olmecs"], 2),
            _q(
                "What was the Renaissance primarily known for?",
                ["Industrial progress", "Cultural rebirth", "Military conquests", "Religious reform"],
                1,
            ),
            _q(
                "Who was the first President of the United States?",
                ["John Adams", "Thomas Jefferson", "Benjamin Franklin", "George Washington"],
                3,
            ),
            _q(
                "Which event marked the end of the Cold War?",
                ["Fall of Berlin Wall", "Cuban Missile Crisis", "Korean War", "Vietnam War"],
                0,
            ),
            _q("What was the name of the first artificial satellite in space?", ["Explorer 1", "Vanguard 1", "Sputnik 1", "Apollo 1"], 2),
            _q(
                "Which queen had the longest reign in British history until Elizabeth II?",
                ["Queen Victoria", "Queen Anne", "Queen Mary", "Queen Elizabeth I"],
                0,
            ),
            _q(
                "What was the main purpose of the Silk Road?",
                ["Religious pilgrimages", "Military campaigns", "Trade routes", "Cultural exchange"],
                2,
            ),
        ],
    },
]

# One finished attempt by student1 on the first quiz, so dashboards are not empty.
DEMO_ATTEMPT_ANSWERS = [3, 1, 2, 1, 1, 2, 2, 1, 2, 1, 0, 1, 2, 0, 2]


def seed_demo_data(db: Session) -> bool:
    """Create demo users and quizzes on an empty database. Returns True if anything was written."""
    if (db.scalar(select(func.count(User.id))) or 0) > 0:
        return False

    users = UserRepository(db)
    created: dict[str, User] = {}
    for entry in DEMO_USERS:
        created[entry["username"]] = users.create(
            username=entry["username"],
            password=DEMO_PASSWORD,
            role=entry["role"],
            display_name=entry["display_name"],
        )

    quizzes = QuizRepository(db)
    teacher = created["teacher1"]
    stored = [quizzes.create(QuizCreateRequest.model_validate(raw), teacher_id=teacher.id) for raw in DEMO_QUIZZES]

    first = stored[0]
    AttemptRepository(db).create(
        quiz_id=first.id,
        student_id=created["student1"].id,
        answers=DEMO_ATTEMPT_ANSWERS,
        score=score_answers(first.questions, DEMO_ATTEMPT_ANSWERS),
        submitted_at=datetime.now(timezone.utc),
    )

    db.commit()
    log.info("seeded %d demo users and %d demo quizzes", len(DEMO_USERS), len(DEMO_QUIZZES))
    return True
