"""Dış servisler (SMTP, OpenAI) dependency olarak verilir; testler app.dependency_overrides ile değiştirir."""
from app.services.email_sender import send_email
from app.services.lifecycle import Generate, SendMail
from app.services.llm import generate_analysis


def get_send_mail() -> SendMail:
    return send_email


def get_generator() -> Generate:
    return generate_analysis
