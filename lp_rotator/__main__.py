from lp_rotator.main import run

run()
