from api.app_factory import run

run()
