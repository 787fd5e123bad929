# Services package init
"""
Prosthesis Orders Backend — Services Layer
============================================

Service Inventory:
    - RecordService: required-field validation, delete PIN gate, bulk update
    - MailClient (abstract): "send a notification" capability
    - EmailJSMailClient: delivery through the EmailJS REST relay
    - SMTPMailClient: HTML rendered locally, delivered through SMTP
    - NotificationDispatcher: record → template fields → MailClient, errors logged
"""
