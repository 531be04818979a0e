from setuptools import setup, find_packages

setup(
    name="uiflow",
    version="0.1.0",
    description="Ordered UI workflow verification runner",
    author="uiflow Team",
    packages=find_packages(include=["uiflow", "uiflow.*"]),
    package_data={"uiflow.workflows": ["examples/*.yaml"]},
    install_requires=[
        "pydantic>=2.0.0",
        "selenium>=4.0.0",
        "webdriver-manager>=3.0.0",
        "PyYAML>=6.0",
        "click>=8.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "black>=22.0.0",
            "isort>=5.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "uiflow=uiflow.cli:main",
        ],
    },
    python_requires=">=3.8",
)
