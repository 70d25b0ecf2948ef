import uvicorn

if __name__ == "__main__":
    print("Starting AeroTrace Integrity API Server...")
    print("Docs available at: http://localhost:8000/docs")

    uvicorn.run(
        "aerotrace.api.server:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
