from .line import Line, SCENE_OPENS_CUE
from .script import Script, ScriptCreate, Scene
from .review import GradeSubmit

__all__ = ['Line', 'SCENE_OPENS_CUE', 'Script', 'ScriptCreate', 'Scene', 'GradeSubmit']
