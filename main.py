"""
Local development server for the Bar Cutting Planner.
Run this file to test the API locally before deploying.
"""
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Import the routes from api/index.py
from api.index import add_part, optimize, optimize_dxf, parse, api_root, root

# Create main app
app = FastAPI()

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add API routes
app.get("/")(root)
app.get("/api")(api_root)
app.post("/api/parse")(parse)
app.post("/api/parts")(add_part)
app.post("/api/optimize")(optimize)
app.post("/api/optimize/dxf")(optimize_dxf)

if __name__ == "__main__":
    print("\n" + "="*60)
    print("🔧 Bar Cutting Planner - Local Development Server")
    print("="*60)
    print("\n✅ Server starting at: http://localhost:8000")
    print("📋 API docs at: http://localhost:8000/docs")
    print("\n💡 Press Ctrl+C to stop the server\n")

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
