#! /usr/bin/env python3

# NAS firmware image build and split script

if __name__ == '__main__':
    from nasfwlib._cli import main
    main()
else:
    raise ImportError('nasfw is not importable. Import nasfwlib instead')
