"""
FastAPI app used as an in-process destination by the recorder tests
"""

import asyncio

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse

app = FastAPI()


@app.post("/users")
async def create_user():
    return JSONResponse({"email": "foo@example.com"})


@app.api_route("/echo/method", methods=["GET", "POST", "PUT", "DELETE"])
async def echo_method(request: Request):
    return PlainTextResponse(request.method)


@app.api_route("/echo/form", methods=["POST", "PUT"])
async def echo_form(request: Request):
    form = await request.form()
    lines = [f"{name}={value}" for name, value in form.multi_items()]
    return PlainTextResponse("\n".join(lines))


@app.post("/echo/multipart")
async def echo_multipart(request: Request):
    form = await request.form()
    parts = []
    for name, value in form.multi_items():
        if isinstance(value, str):
            parts.append({"name": name, "value": value})
        else:
            content = await value.read()
            parts.append({"name": name, "filename": value.filename, "content": content.hex()})
    return {"parts": parts}


@app.post("/echo/json")
async def echo_json(request: Request):
    return JSONResponse(await request.json())


@app.get("/echo/headers")
async def echo_headers(request: Request):
    return dict(request.headers)


@app.get("/login")
async def login(response: Response):
    response.set_cookie("session", "abc123")
    return {"logged_in": True}


@app.get("/whoami")
async def whoami(request: Request):
    return PlainTextResponse(request.cookies.get("session", "anonymous"))


@app.get("/plain")
async def plain():
    return PlainTextResponse("hello world")


@app.get("/empty")
async def empty():
    return Response(status_code=200)


@app.get("/slow")
async def slow():
    await asyncio.sleep(1)
    return PlainTextResponse("finally")


@app.get("/status/{code}")
async def status(code: int):
    return PlainTextResponse(f"status {code}", status_code=code)
