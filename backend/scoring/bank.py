from types import MappingProxyType

CATEGORIES = ("practical", "analytical", "social", "creative", "technical", "leadership")


def _question(qid, text, options):
    return MappingProxyType({
        "id": qid,
        "question": text,
        "options": tuple(MappingProxyType({"text": t, "category": c}) for t, c in options),
    })


def _career(title, description, match):
    return MappingProxyType({"title": title, "description": description, "matchPercentage": match})


def _profile(careers, strengths, study_areas):
    return MappingProxyType({
        "careers": tuple(_career(*c) for c in careers),
        "strengths": tuple(strengths),
        "studyAreas": tuple(study_areas),
    })


QUESTIONS = (
    _question(1, "What type of activities do you enjoy most?", [
        ("Working with your hands and building things", "practical"),
        ("Analyzing data and solving complex problems", "analytical"),
        ("Helping and teaching others", "social"),
        ("Creating art, music, or writing", "creative"),
    ]),
    _question(2, "In a group project, you prefer to:", [
        ("Lead the team and coordinate tasks", "leadership"),
        ("Focus on research and technical details", "technical"),
        ("Facilitate discussions and resolve conflicts", "social"),
        ("Come up with innovative ideas and solutions", "creative"),
    ]),
    _question(3, "Your ideal work environment would be:", [
        ("A laboratory or workshop with tools and equipment", "technical"),
        ("An office where you can analyze data and strategies", "analytical"),
        ("A collaborative space where you interact with many people", "social"),
        ("A flexible space where you can express creativity", "creative"),
    ]),
)

CAREER_TABLE = MappingProxyType({
    "practical": _profile(
        [
            ("Mechanical Engineer", "Design and build mechanical systems", 95),
            ("Construction Manager", "Oversee building projects", 88),
            ("Automotive Technician", "Repair and maintain vehicles", 82),
        ],
        ["Problem-solving", "Hands-on skills", "Technical aptitude", "Attention to detail"],
        ["Engineering", "Technology", "Applied Sciences", "Trades"],
    ),
    "analytical": _profile(
        [
            ("Data Scientist", "Analyze complex data to find insights", 96),
            ("Financial Analyst", "Evaluate investment opportunities", 89),
            ("Research Scientist", "Conduct scientific research", 85),
        ],
        ["Critical thinking", "Mathematical skills", "Research abilities", "Pattern recognition"],
        ["Mathematics", "Computer Science", "Economics", "Natural Sciences"],
    ),
    "social": _profile(
        [
            ("School Counselor", "Guide and support students", 94),
            ("Human Resources Manager", "Manage employee relations", 87),
            ("Social Worker", "Help individuals and communities", 83),
        ],
        ["Communication", "Empathy", "Interpersonal skills", "Conflict resolution"],
        ["Psychology", "Education", "Social Work", "Human Resources"],
    ),
    "creative": _profile(
        [
            ("Graphic Designer", "Create visual communications", 93),
            ("Marketing Creative Director", "Lead creative campaigns", 88),
            ("User Experience Designer", "Design digital experiences", 84),
        ],
        ["Creativity", "Visual thinking", "Innovation", "Artistic expression"],
        ["Design", "Fine Arts", "Marketing", "Digital Media"],
    ),
    "technical": _profile(
        [
            ("Software Developer", "Build applications and systems", 95),
            ("Cybersecurity Specialist", "Protect digital systems", 90),
            ("Network Administrator", "Manage computer networks", 85),
        ],
        ["Technical skills", "Logical thinking", "System design", "Troubleshooting"],
        ["Computer Science", "Information Technology", "Cybersecurity", "Software Engineering"],
    ),
    "leadership": _profile(
        [
            ("Project Manager", "Lead and coordinate projects", 92),
            ("Business Consultant", "Advise organizations on strategy", 88),
            ("Operations Manager", "Oversee business operations", 85),
        ],
        ["Leadership", "Strategic thinking", "Communication", "Team management"],
        ["Business Administration", "Management", "Leadership Studies", "Organizational Psychology"],
    ),
})


def questions_payload(questions=QUESTIONS):
    """Plain JSON-ready copy of the question bank for the API."""
    return [
        {"id": q["id"], "question": q["question"], "options": [dict(o) for o in q["options"]]}
        for q in questions
    ]
