"""One APIRouter per resource group; main.py mounts each under its /api prefix."""
