from setuptools import setup, find_packages

setup(
    name="vncbrute",
    version="0.1",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        'pycryptodome',
        'numpy',
        'pyyaml',
        'python-dotenv',
        'tqdm'
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': ['vncbrute=vncbrute.main:main'],
    },
)
