from dotenv import load_dotenv
from pathlib import Path
import uvicorn

ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

from room_inventory.main import app  # noqa: E402

if __name__ == "__main__":
    uvicorn.run("room_inventory.main:app", host="0.0.0.0", port=8000, reload=True)
