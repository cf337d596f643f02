from fastapi import Request

from notelab_api.config import Settings
from notelab_api.workspace import NoteLab


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_lab(request: Request) -> NoteLab:
    return request.app.state.lab
