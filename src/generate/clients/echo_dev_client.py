# AI INSTRUCTION:
# Provide a dummy on-device runtime for local dev and testing without a model.

class EchoDevSession:
    def __init__(self):
        self.model = "echo-dev"

    def prompt(self, text: str) -> str:
        lines = [line for line in text.splitlines() if line.strip()]
        return f"[ECHO RESPONSE]\n{lines[-1] if lines else '(no user input)'}"


class EchoDevRuntime:
    def available(self) -> bool:
        return True

    def create_session(self) -> EchoDevSession:
        return EchoDevSession()
