import uuid


def next_identifier() -> str:
    """生成全局唯一的资源id(随机128位uuid)"""
    return str(uuid.uuid4())


def extension_of(filename: str) -> str:
    """获取原始文件名最后一个`.`之后的部分，没有`.`时返回整个文件名"""
    return filename.split(".")[-1]


def stored_name(identifier: str, filename: str) -> str:
    """拼接文件存储名字: id + `.` + 扩展名，原始文件名没有扩展名时只返回id"""
    if "." not in filename:
        return identifier
    extension = extension_of(filename)
    if not extension:
        return identifier
    return f"{identifier}.{extension}"
