from pathlib import Path
from datetime import date
import os
import tomllib
from pydantic import BaseModel, Field, ValidationError
from typing import Optional
from jinja2 import Template


# ─── Config Schema ─────────────────────────────────────────────────
class UIConfig(BaseModel):
    color: bool = True
    ampm: bool = False


class JournalConfig(BaseModel):
    dir: str = ""


class MeetingsConfig(BaseModel):
    duration: int = Field(60, ge=1)
    window: int = Field(15, ge=0)
    notify_command: str = "notify-send"


class BjConfig(BaseModel):
    title: str = "Bullet Journal Configuration"
    ui: UIConfig = UIConfig()
    journal: JournalConfig = JournalConfig()
    meetings: MeetingsConfig = MeetingsConfig()


# ─── Commented Template ────────────────────────────────────
CONFIG_TEMPLATE = """\
title = "{{ title }}"

[ui]
# color: bool = true | false
# false gives plain output suitable for piping
color = {{ ui.color | lower }}

# ampm: bool = true | false
# show meeting times as 3:00pm rather than 15:00
ampm = {{ ui.ampm | lower }}

[journal]
# dir: str
# Directory holding one Markdown file per day (YYYY-MM-DD.md).
# Leave empty to use the "journal" directory below the bj home.
dir = "{{ journal.dir }}"

[meetings]
# duration: int = minutes used by "bj meeting add" when -u is omitted
duration = {{ meetings.duration }}

# window: int = minutes of lookahead used by "bj meeting notify"
window = {{ meetings.window }}

# notify_command: str
# Called as: <notify_command> "Upcoming meeting" "<message>"
# When the command cannot be found the message is printed instead.
notify_command = "{{ meetings.notify_command }}"
"""

# ─── Save Config with Comments ───────────────────────────────


def render_config(config: BjConfig) -> str:
    template = Template(CONFIG_TEMPLATE)
    return template.render(**config.model_dump()).strip() + "\n"


def save_config_from_template(config: BjConfig, path: Path):
    path.write_text(render_config(config), encoding="utf-8")
    print(f"✅ Config with comments written to: {path}")


# ─── Main Environment Class ───────────────────────────────


class JournalEnvironment:
    def __init__(self):
        self._home = self._resolve_home()
        self._config: Optional[BjConfig] = None

    @property
    def home(self) -> Path:
        return self._home

    @property
    def config_path(self) -> Path:
        return self.home / "config.toml"

    @property
    def notified_path(self) -> Path:
        return self.home / "notified.meetings"

    @property
    def journal_dir(self) -> Path:
        configured = self.config.journal.dir.strip()
        if configured:
            return Path(configured).expanduser()
        return self.home / "journal"

    def path_for(self, day: date) -> Path:
        """Resolve the Markdown file holding the bullets for ``day``."""
        return self.journal_dir / f"{day:%Y-%m-%d}.md"

    def ensure(self, init_config: bool = True):
        self.home.mkdir(parents=True, exist_ok=True)

        if init_config and not self.config_path.exists():
            save_config_from_template(BjConfig(), self.config_path)

        self.journal_dir.mkdir(parents=True, exist_ok=True)

    def load_config(self) -> BjConfig:
        # Step 1: Use defaults if the file doesn't exist
        if not self.config_path.exists():
            self._config = BjConfig()
            return self._config

        # Step 2: Try to load and validate the config
        try:
            with open(self.config_path, "rb") as f:
                data = tomllib.load(f)
            config = BjConfig.model_validate(data)
        except (ValidationError, tomllib.TOMLDecodeError) as e:
            print(f"⚠️ Config error in {self.config_path}: {e}\nUsing defaults.")
            self._config = BjConfig()
            return self._config

        # Step 3: Regenerate the canonical version when keys are missing
        rendered = render_config(config)
        current_text = self.config_path.read_text(encoding="utf-8")
        if rendered != current_text:
            self.config_path.write_text(rendered, encoding="utf-8")
            print(f"✅ Updated {self.config_path} with any missing defaults.")

        self._config = config
        return config

    @property
    def config(self) -> BjConfig:
        if self._config is None:
            return self.load_config()
        return self._config

    def _resolve_home(self) -> Path:
        env_home = os.getenv("BJ_HOME")
        if env_home:
            return Path(env_home).expanduser()

        xdg_home = os.getenv("XDG_CONFIG_HOME")
        if xdg_home:
            return Path(xdg_home).expanduser() / "bj"
        else:
            return Path.home() / ".config" / "bj"
