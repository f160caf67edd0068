"""example usage"""

import uvicorn
from fastapi import FastAPI, Request, Response

from remo import AccessDecision, MakeSchema, Model, RemoConfig, RequestOptions, register, serve


class WidgetCreate(MakeSchema("create")):
    name: str
    size: int = 0


class WidgetRead(MakeSchema("read", soft_delete=True, time_stamp=True)):
    name: str
    size: int = 0


class Widgets(Model[WidgetCreate, WidgetRead]):
    def __init__(self):
        super().__init__(
            "Widget",
            collection="widgets",
            create_model=WidgetCreate,
            read_model=WidgetRead,
            references={"owner": "User"},
            make_time_stamps=True,
        )

    async def on_create(self, document):
        print("on_create", document["_id"])

    async def on_delete(self, document):
        print("on_delete", document["_id"])


register(Widgets())
register(Model("User", collection="users"))


def hide_emails(request: Request, response: Response, options: RequestOptions) -> AccessDecision:
    return AccessDecision.allow(options.with_query(select="-email"))


tapp = FastAPI()


@tapp.get("/")
async def root():
    return {"message": "Hello World"}


serve(
    tapp,
    RemoConfig.from_env(
        access={"User": {"list": hide_emails, "get": hide_emails, "delete": lambda *_: False}},
        callbacks={"Widget": {"create": lambda widget: print("created", widget["name"])}},
    ),
)


if __name__ == "__main__":
    uvicorn.run(tapp, host="localhost", port=8000)
