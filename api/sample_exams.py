"""
api/sample_exams.py — 카탈로그 초기 데이터

카탈로그 API 응답 형식 그대로 둔다 (exam_adapter가 변환).
"""

SAMPLE_EXAMS = [
    {
        "success": True,
        "data": {
            "_id": "sample-mains-1",
            "title": "Weekend Mains Practice Test",
            "examType": "mains",
            "duration": 30,
            "totalQuestions": 6,
            "questions": [
                {
                    "_id": "m1",
                    "questionText": "What is the derivative of x^2 with respect to x?",
                    "questionType": "mcq",
                    "options": ["x", "2x", "x^2", "2"],
                    "correctAnswer": "2x",
                    "marks": 4,
                    "negativeMarks": 1,
                    "subject": "maths",
                },
                {
                    "_id": "m2",
                    "questionText": "Which of the following are prime numbers?",
                    "questionType": "multiple",
                    "options": [
                        {"text": "2", "isCorrect": True},
                        {"text": "4", "isCorrect": False},
                        {"text": "7", "isCorrect": True},
                        {"text": "9", "isCorrect": False},
                    ],
                    "marks": 4,
                    "negativeMarks": 2,
                    "subject": "maths",
                },
                {
                    "_id": "p1",
                    "questionText": "SI unit of force?",
                    "questionType": "mcq",
                    "options": ["Joule", "Newton", "Watt", "Pascal"],
                    "correctAnswer": {"text": "Newton"},
                    "marks": 4,
                    "negativeMarks": 1,
                    "subject": "physics",
                },
                {
                    "_id": "p2",
                    "questionText": "A body falls freely for 2 s (g = 10 m/s^2). Distance fallen in metres?",
                    "questionType": "integer",
                    "correctAnswer": 20,
                    "marks": 4,
                    "negativeMarks": 0,
                    "subject": "physics",
                },
                {
                    "_id": "c1",
                    "questionText": "Atomic number of carbon?",
                    "questionType": "integer",
                    "correctAnswer": "6",
                    "marks": 4,
                    "subject": "chemistry",
                },
                {
                    "_id": "c2",
                    "questionText": "Which gas is produced when zinc reacts with dilute HCl?",
                    "questionType": "mcq",
                    "options": ["O2", "H2", "Cl2", "CO2"],
                    "correctAnswer": "H2",
                    "marks": 4,
                    "negativeMarks": 1,
                    "subject": "chemistry",
                },
            ],
        },
    },
]
