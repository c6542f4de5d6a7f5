from setuptools import setup, find_packages

# Basic information
VERSION = '0.1.0'
DESCRIPTION = 'Download fan-fiction chapters, stories and series as plain text'
LONG_DESCRIPTION = 'This package resolves FanFiction.Net and Archive of Our Own URLs to site-specific fetchers and packages the extracted text as a downloadable file.'

# Read from requirements.txt, but filter out comments and empty lines
try:
    with open('requirements.txt', encoding='utf-8') as f:
        install_requires = [line.strip() for line in f if line.strip() and not line.startswith('#')]
except FileNotFoundError:
    install_requires = ['requests', 'beautifulsoup4', 'click', 'python-slugify']

setup(
    name='fanfic-retriever',
    version=VERSION,
    description=DESCRIPTION,
    long_description=LONG_DESCRIPTION,
    packages=find_packages(include=['fanfic_retriever', 'fanfic_retriever.*']),
    install_requires=install_requires,
    extras_require={
        'test': ['pytest>=7.0'],
    },
    entry_points={
        'console_scripts': [
            'fanfic = fanfic_retriever.cli.main:fanfic',
        ],
    },
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: End Users/Desktop',
        'Programming Language :: Python :: 3',
        'Operating System :: OS Independent',
        'Topic :: Utilities',
    ],
    python_requires='>=3.9', # ThreadPoolExecutor.shutdown(cancel_futures=...)
)
