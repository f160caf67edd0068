import inspect

from fastapi import Request, Response
from pydantic import BaseModel, ConfigDict

from remo.core.errors import AccessDeniedError, RemoError, StoreError, describe
from remo.core.logger import get_logger
from remo.local_typing import AccessRule, AccessRules, Action
from remo.schemas.core import RequestOptions

logger = get_logger(__name__)

ALLOW = "*"


class AccessDecision(BaseModel):
    """What an access rule returns: allow or deny, optionally with narrowed options."""

    model_config = ConfigDict(frozen=True)

    allowed: bool
    options: RequestOptions | None = None

    @classmethod
    def allow(cls, options: RequestOptions | None = None) -> "AccessDecision":
        return cls(allowed=True, options=options)

    @classmethod
    def deny(cls) -> "AccessDecision":
        return cls(allowed=False)


class AccessGate:
    def __init__(self, rules: AccessRules) -> None:
        self._rules = rules

    def rule_for(self, model_name: str, action: Action) -> AccessRule | None:
        return self._rules.get(model_name, {}).get(action)

    async def check(
        self,
        model_name: str,
        action: Action,
        request: Request,
        response: Response,
        options: RequestOptions,
    ) -> RequestOptions:
        """Run the rule for (model, action) and return the options the action should use.

        Raises:
            AccessDeniedError: the rule said no.
        """
        rule = self.rule_for(model_name, action)
        if rule is None or rule == ALLOW:
            return options

        try:
            result = rule(request, response, options)
            if inspect.isawaitable(result):
                result = await result
        except RemoError:
            raise
        except Exception as err:
            raise StoreError(f"Access rule for {model_name}.{action} failed: {describe(err)}") from err
        if isinstance(result, bool):
            result = AccessDecision(allowed=result)
        if not isinstance(result, AccessDecision):
            raise RemoError(
                f"Access rule for {model_name}.{action} returned {type(result).__name__}, "
                "expected AccessDecision or bool"
            )

        if not result.allowed:
            raise AccessDeniedError(f"{action} on {model_name} denied")
        if result.options is not None:
            logger.debug("access rule for %s.%s replaced request options", model_name, action)
            return result.options
        return options
