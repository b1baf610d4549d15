# -*- coding: utf-8 -*-
from setuptools import setup

packages = \
['nasfwlib']

package_data = \
{'': ['*']}

modules = \
['nasfw']
install_requires = \
['typing-extensions>=4.4,<5.0']

entry_points = \
{'console_scripts': ['nasfw = nasfwlib._cli:main']}

setup_kwargs = {
    'name': 'nasfw',
    'version': '1.0.0',
    'description': 'Build and split firmware images for NAS devices',
    'long_description': "# NAS Firmware Tool\n\nBuild and split the firmware container used by a family of NAS devices.\nA firmware image is a fixed 64 byte header followed by a kernel, an initrd and an optional defaults archive.\n\nPython software can use the provided library (`nasfwlib`). Software in other languages can execute the `nasfw` tool.\n\n## Install\n\n```\npip3 install .\n```\n\n## Usage\n\n```\n./nasfw.py build -k uImage -i uInitrd -o firmware.bin -p 1 -c 2 -m 3\n./nasfw.py split firmware.bin -k uImage -i uInitrd -d defaults.tar.gz\n./nasfw.py info firmware.bin\n```\n\nAll output will be in JSON form and sent to `stdout`.\nAdditional information is logged to `stderr`; pass `--debug` for more of it.\n\n## Tests\n\n```\ncd test\npython3 run_tests.py\n```\n",
    'packages': packages,
    'package_data': package_data,
    'py_modules': modules,
    'install_requires': install_requires,
    'entry_points': entry_points,
    'python_requires': '>=3.8',
}


setup(**setup_kwargs)
