import os
import uvicorn
from farm.api import app
from farm.config import LOG_LEVEL

if __name__ == "__main__":
    port = int(os.getenv("PORT", "8082"))
    uvicorn.run(app, host="0.0.0.0", port=port, log_level=LOG_LEVEL)
