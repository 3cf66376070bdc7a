"""
handlers/ - Presentation Layer
================================
Telegram bot handlers. Each handler reads the command, delegates to the
admin workspace or the public catalog, and sends the result back.
No business logic lives here.
"""
