"""Reference data seeded at startup: cry reason descriptions and legal documents."""

import logging

from sqlalchemy.orm import Session

from ..models import CryReasonDescription, LegalDocument

logger = logging.getLogger(__name__)

CRY_REASONS = [
    {
        "class_name": "hunger_food",
        "title": "Hunger (Food)",
        "description": "Your baby is hungry and needs solid food. This type of cry usually occurs when it's been 2-3 hours since the last meal.",
        "recommendations": [
            "Try offering solid food if baby is eating solids",
            "Check if it's been 2-3 hours since last meal",
            "Ensure baby is in comfortable position for feeding",
        ],
    },
    {
        "class_name": "hunger_milk",
        "title": "Hunger (Milk)",
        "description": "Your baby is hungry and needs milk or formula. This is one of the most common reasons babies cry.",
        "recommendations": [
            "Try feeding if it's been more than 2 hours",
            "Check if baby is showing hunger cues",
            "Ensure proper latch if breastfeeding",
        ],
    },
    {
        "class_name": "sleepiness",
        "title": "Sleepiness",
        "description": "Your baby is tired and needs to sleep. Overtired babies can become fussy and harder to settle.",
        "recommendations": [
            "Create a calm, dark environment",
            "Try gentle rocking or swaddling",
            "Check if it's nap time or bedtime",
        ],
    },
    {
        "class_name": "lack_of_security",
        "title": "Need for Comfort",
        "description": "Your baby needs comfort and security. They may want to be held or soothed.",
        "recommendations": [
            "Try holding and cuddling your baby",
            "Use gentle rocking or swaying motions",
            "Speak or sing softly to your baby",
        ],
    },
    {
        "class_name": "diaper_urine",
        "title": "Wet Diaper",
        "description": "Your baby has a wet diaper and needs to be changed. Some babies are more sensitive to wetness than others.",
        "recommendations": [
            "Check and change diaper if wet",
            "Clean baby gently and thoroughly",
            "Apply diaper cream if needed",
        ],
    },
    {
        "class_name": "diaper_bowel",
        "title": "Soiled Diaper",
        "description": "Your baby has a soiled diaper and needs immediate changing. This can cause discomfort and irritation.",
        "recommendations": [
            "Check and change diaper immediately",
            "Clean baby thoroughly with wipes",
            "Allow some diaper-free time if possible",
        ],
    },
    {
        "class_name": "internal_pain",
        "title": "Internal Pain",
        "description": "Your baby may be experiencing internal discomfort such as gas, colic, or digestive issues.",
        "recommendations": [
            "Check for signs of colic or gas",
            "Try gentle tummy massage",
            "Consider consulting pediatrician if persistent",
        ],
    },
    {
        "class_name": "external_pain",
        "title": "External Pain",
        "description": "Your baby may be experiencing external discomfort or pain from something in their environment.",
        "recommendations": [
            "Check for any visible injuries or irritation",
            "Look for tight clothing or hair wrapped around fingers/toes",
            "Consult pediatrician if cause unknown",
        ],
    },
    {
        "class_name": "physical_discomfort",
        "title": "Physical Discomfort",
        "description": "Your baby is uncomfortable due to physical factors like temperature, clothing, or position.",
        "recommendations": [
            "Check room temperature and clothing",
            "Look for tags or rough fabric",
            "Try changing baby's position",
        ],
    },
    {
        "class_name": "unmet_needs",
        "title": "Unmet Needs",
        "description": "Your baby has other needs that haven't been met, such as stimulation or attention.",
        "recommendations": [
            "Try interacting with your baby",
            "Check if baby needs stimulation or quiet time",
            "Consider if baby needs a change of scenery",
        ],
    },
    {
        "class_name": "breathing_difficulties",
        "title": "Breathing Difficulties",
        "description": "Your baby may be having trouble breathing due to congestion or other respiratory issues.",
        "recommendations": [
            "Check for nasal congestion",
            "Ensure proper air circulation",
            "Consult pediatrician immediately if breathing seems labored",
        ],
    },
    {
        "class_name": "normal",
        "title": "Normal Fussiness",
        "description": "Your baby is experiencing normal fussiness without a specific urgent need.",
        "recommendations": [
            "Try general comfort measures",
            "Check if baby needs attention or stimulation",
            "Sometimes babies just need to cry",
        ],
    },
    {
        "class_name": "no_cry_detected",
        "title": "No Cry Detected",
        "description": "No crying was detected in this audio recording.",
        "recommendations": [
            "No cry was detected in this recording",
            "Try recording again when baby is crying",
            "Ensure microphone is close to baby",
        ],
    },
]

LEGAL_DOCUMENTS = [
    {
        "type": "terms",
        "locale": "en",
        "title": "Terms and Conditions",
        "content": (
            "<h1>Terms and Conditions</h1>"
            "<p>Welcome to LetBabyTalk. By using our service, you agree to these terms.</p>"
            "<h2>1. Service Description</h2>"
            "<p>LetBabyTalk provides AI-powered baby cry analysis to help parents understand their baby's needs.</p>"
            "<h2>2. User Responsibilities</h2>"
            "<p>Users are responsible for providing accurate information and using the service appropriately.</p>"
            "<h2>3. Privacy</h2>"
            "<p>Your privacy is important to us. Please review our Privacy Policy.</p>"
            "<h2>4. Limitation of Liability</h2>"
            "<p>LetBabyTalk is not a medical service. Always consult healthcare professionals for medical concerns.</p>"
        ),
    },
    {
        "type": "privacy",
        "locale": "en",
        "title": "Privacy Policy",
        "content": (
            "<h1>Privacy Policy</h1>"
            "<p>This Privacy Policy describes how LetBabyTalk collects, uses, and protects your information.</p>"
            "<h2>1. Information We Collect</h2>"
            "<p>We collect audio recordings, user profiles, and usage data to provide our service.</p>"
            "<h2>2. How We Use Your Information</h2>"
            "<p>Your information is used to analyze baby cries and improve our service.</p>"
            "<h2>3. Data Security</h2>"
            "<p>We implement appropriate security measures to protect your personal information.</p>"
            "<h2>4. Contact Us</h2>"
            "<p>If you have questions about this Privacy Policy, please contact us.</p>"
        ),
    },
    {
        "type": "terms",
        "locale": "id",
        "title": "Syarat dan Ketentuan",
        "content": (
            "<h1>Syarat dan Ketentuan</h1>"
            "<p>Selamat datang di LetBabyTalk. Dengan menggunakan layanan kami, Anda setuju dengan syarat-syarat ini.</p>"
            "<h2>1. Deskripsi Layanan</h2>"
            "<p>LetBabyTalk menyediakan analisis tangisan bayi bertenaga AI untuk membantu orang tua memahami kebutuhan bayi mereka.</p>"
            "<h2>2. Tanggung Jawab Pengguna</h2>"
            "<p>Pengguna bertanggung jawab untuk memberikan informasi yang akurat dan menggunakan layanan dengan tepat.</p>"
            "<h2>3. Privasi</h2>"
            "<p>Privasi Anda penting bagi kami. Silakan tinjau Kebijakan Privasi kami.</p>"
        ),
    },
]


def seed_cry_reasons(db: Session) -> int:
    """Upsert every cry reason by class name. Returns the number written."""
    existing = {r.class_name: r for r in db.query(CryReasonDescription).all()}
    for reason in CRY_REASONS:
        row = existing.get(reason["class_name"])
        if row is None:
            db.add(CryReasonDescription(**reason))
        else:
            row.title = reason["title"]
            row.description = reason["description"]
            row.recommendations = list(reason["recommendations"])
    db.commit()
    logger.info("Seeded %d cry reason descriptions", len(CRY_REASONS))
    return len(CRY_REASONS)


def seed_legal_documents(db: Session) -> int:
    """Insert legal documents that are missing for their (type, locale)."""
    inserted = 0
    for doc in LEGAL_DOCUMENTS:
        exists = (
            db.query(LegalDocument)
            .filter(LegalDocument.type == doc["type"], LegalDocument.locale == doc["locale"])
            .first()
        )
        if exists is None:
            db.add(LegalDocument(**doc, version="v1.0", is_active=True))
            inserted += 1
    db.commit()
    if inserted:
        logger.info("Seeded %d legal documents", inserted)
    return inserted
