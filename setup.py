from setuptools import setup, find_packages

setup(
    name="shellsuggest",
    version="0.1.0",
    description="Terminal completion daemon with an interactive suggestion picker",
    author="phisanti",
    author_email="tisalon@outlook.com",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"shellsuggest.shell": ["*.zsh", "*.bash", "*.fish"]},
    install_requires=[
        "typer>=0.12.0",
        "rich>=13.0.0",
        "prompt_toolkit>=3.0.36",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "shellsuggest=shellsuggest.main:shellsuggest",
        ],
    },
    python_requires=">=3.10",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
)
