"""
Serverless function handler for the form builder API.
"""
import sys
from pathlib import Path

# Add backend to path
backend_path = Path(__file__).parent.parent / "backend"
sys.path.insert(0, str(backend_path))

from mangum import Mangum
from formbackend.main import app

# Wrap the ASGI app with Mangum for AWS Lambda/Vercel compatibility
handler = Mangum(app, lifespan="off")
