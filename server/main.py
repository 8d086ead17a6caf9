"""
Serve the SchoolFund API with uvicorn.

    python main.py
    uvicorn main:app --reload
"""

import uvicorn

from schoolfund.app import create_app
from schoolfund.config import get_settings

app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)
