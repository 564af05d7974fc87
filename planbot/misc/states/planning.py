from aiogram.fsm.state import State, StatesGroup


class PlanningUpload(StatesGroup):
    preview = State()
    document = State()
