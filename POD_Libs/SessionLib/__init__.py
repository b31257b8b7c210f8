"""
SessionLib - Editing session orchestration

Editor state, undo history, the render pipeline, the coalescing render
scheduler and the EditorSession context object.
"""

from POD_Libs.SessionLib.state import EditorState
from POD_Libs.SessionLib.history import History
from POD_Libs.SessionLib.pipeline import RenderResult, render_design, render_preview
from POD_Libs.SessionLib.scheduler import RenderScheduler
from POD_Libs.SessionLib.session import EditorSession

__all__ = [
    "EditorState",
    "History",
    "RenderResult",
    "render_design",
    "render_preview",
    "RenderScheduler",
    "EditorSession",
]
