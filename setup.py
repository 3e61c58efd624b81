# setup.py
from setuptools import setup, find_namespace_packages

setup(
    name="Volley3D",
    version="0.1.0",
    packages=find_namespace_packages(include=["common", "engine", "game", "game.*", "render"]),
    py_modules=["client", "server"],
    install_requires=["panda3d"],
    extras_require={"test": ["pytest"]},
    options = {
        "build_apps": {
            "gui_apps":     {"Client": "client.py"},
            "console_apps": {"Server": "server.py"},
            "include_patterns": ["common/**","engine/**","game/**","render/**","configs/**","models/**","README.md"],
            "exclude_patterns": ["**/__pycache__/**","**/*.pyc"],
            "plugins": ["pandagl"],
            "platforms": ["manylinux2014_x86_64","win_amd64","macosx_11_0_arm64"],
            "log_filename": None,
        }
    }
)
