import time


def ts():
    return time.strftime("%Y-%m-%d %H:%M:%S")


def log(msg):
    print(f"[{ts()}] {msg}", flush=True)


class StepLogger:
    def __init__(self, prefix="WF", total=None):
        self.prefix = prefix
        self.total = total

    def step(self, n, message, **meta):
        total = f"/{self.total:02d}" if self.total else ""
        tag = f"[{self.prefix} STEP {n:02d}{total}]"
        if meta:
            extras = " ".join(f"{k}={v!r}" for k, v in meta.items())
            log(f"{tag} {message} {extras}")
        else:
            log(f"{tag} {message}")

    def note(self, message):
        log(f"[{self.prefix}] {message}")
