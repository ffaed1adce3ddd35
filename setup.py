from setuptools import setup


requires = ["freetype-py>=2.0.0", "requests>=2.20"]

with open('README.md') as f:
    readme = f.read()

setup(
    name='labelwire',
    version='0.1.0',
    description='Render text labels and print them on a networked label printer',
    long_description=readme,
    long_description_content_type='text/markdown',
    license='MIT',
    keywords='label printer bitmap socket freetype',
    packages=[
        "labelwire",
    ],
    python_requires='>=3.8',
    install_requires=requires,
    extras_require={
        'test': ['pytest'],
    },
    classifiers=[
        'Topic :: Printing',
    ],
)
