"""Finding, downloading, unpacking and applying release updates of an executable."""