# Presentation Layer
# ==================
# FastAPI JSON API over the application layer (see app.py).
