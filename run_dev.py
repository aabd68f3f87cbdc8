# run_dev.py
"""
Local development launcher for the ChromeMind API.
Equivalent to: `uvicorn src.app:app --reload --host 127.0.0.1 --port 8000`
"""

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "src.app:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
