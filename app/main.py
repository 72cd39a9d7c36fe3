import uvicorn

from app import create_app

app = create_app()


@app.get("/", tags=["Health"])
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, proxy_headers=True)
