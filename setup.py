from setuptools import setup

with open("tapolink/version.py") as f:
    exec(f.read())

setup(
    name="tapolink",
    version=__version__,  # type: ignore # noqa: F821
    description="Python API for the local protocol of Tapo smart plugs and bulbs",
    url="",
    author="",
    author_email="",
    license="GPLv3",
    packages=["tapolink"],
    install_requires=[
        "aiohttp",
        "asyncclick",
        "cryptography",
        "mashumaro",
        "multidict",
        "orjson",
        "yarl",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "pytest-mock",
        ],
    },
    python_requires=">=3.11",
    entry_points={"console_scripts": ["tapolink=tapolink.cli:cli"]},
    zip_safe=False,
)
